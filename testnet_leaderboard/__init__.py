"""Activity leaderboard for block-explorer testnet addresses."""
