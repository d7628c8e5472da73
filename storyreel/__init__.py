"""storyreel — narrated vertical video renderer."""
