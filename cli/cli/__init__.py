"""pipecheck command-line interface."""
