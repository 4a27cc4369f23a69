"""Terminal image backends and the background render worker."""
