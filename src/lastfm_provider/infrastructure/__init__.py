"""Infrastructure layer: Last.fm integration, built components, persistence, logging."""
