"""Engine — step runner and the standard setup sequence."""
