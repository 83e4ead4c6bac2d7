"""The election state engine: voters, elections, candidates and vote counts."""
