"""Caption timing, capability probing, render planning and composition."""
