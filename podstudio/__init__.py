"""podstudio - podcast production studio backend."""
