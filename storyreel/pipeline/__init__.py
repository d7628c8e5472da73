"""Request orchestration and the I/O collaborators it drives."""
