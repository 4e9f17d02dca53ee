"""querygate command line interface."""
