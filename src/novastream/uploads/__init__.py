"""Upload streaming path: in-memory multipart intake and provider hand-off."""
