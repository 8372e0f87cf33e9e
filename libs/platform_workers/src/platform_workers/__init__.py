"""Redis and RQ plumbing for the covenant monitor's batch testing queue."""
