"""Back end for the score edition review tool."""
