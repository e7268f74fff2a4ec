"""Domain stores, one binary data file each."""
