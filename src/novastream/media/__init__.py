"""Resource listing, update and deletion backed by the media provider."""
