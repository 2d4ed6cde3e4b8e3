"""Runtime services shared by the history container."""
