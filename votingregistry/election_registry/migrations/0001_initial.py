from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='VotingRegistry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('admin', models.CharField(editable=False, help_text='Identity of the administrative principal.', max_length=255)),
                ('next_election_id', models.PositiveBigIntegerField(default=1, help_text='Id handed to the next created election.')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name_plural': 'voting registries',
            },
        ),
        migrations.CreateModel(
            name='Election',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('election_id', models.PositiveBigIntegerField()),
                ('name', models.CharField(max_length=255)),
                ('state', models.CharField(choices=[('upcoming', 'Upcoming'), ('ongoing', 'Ongoing'), ('ended', 'Ended')], default='upcoming', max_length=16)),
                ('next_candidate_id', models.PositiveBigIntegerField(default=1)),
                ('start_time', models.BigIntegerField()),
                ('end_time', models.BigIntegerField()),
                ('registry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='elections', to='election_registry.votingregistry')),
            ],
            options={
                'ordering': ['registry', 'election_id'],
                'constraints': [models.UniqueConstraint(fields=('registry', 'election_id'), name='unique_election_id_per_registry')],
            },
        ),
        migrations.CreateModel(
            name='Candidate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('candidate_id', models.PositiveBigIntegerField()),
                ('name', models.CharField(max_length=255)),
                ('election', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='candidates', to='election_registry.election')),
            ],
            options={
                'ordering': ['candidate_id'],
                'constraints': [models.UniqueConstraint(fields=('election', 'candidate_id'), name='unique_candidate_id_per_election')],
            },
        ),
        migrations.CreateModel(
            name='VoteCount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('candidate_id', models.PositiveBigIntegerField()),
                ('count', models.PositiveBigIntegerField(default=0)),
                ('election', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vote_counts', to='election_registry.election')),
            ],
            options={
                'ordering': ['candidate_id'],
                'constraints': [models.UniqueConstraint(fields=('election', 'candidate_id'), name='unique_vote_count_per_candidate')],
            },
        ),
        migrations.CreateModel(
            name='Voter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('identity', models.CharField(db_index=True, max_length=255)),
                ('details', models.TextField(blank=True)),
                ('has_voted', models.BooleanField(default=False)),
                ('vote_history', models.JSONField(blank=True, default=list)),
                ('registry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='voters', to='election_registry.votingregistry')),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('registry', 'identity'), name='unique_voter_identity_per_registry')],
            },
        ),
    ]
