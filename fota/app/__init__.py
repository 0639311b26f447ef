"""Runtime composition: serial pipeline workers, settings and the CLI entry."""
