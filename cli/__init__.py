"""binclean command line interface."""
