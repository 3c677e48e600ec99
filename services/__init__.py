"""Authentication core: hashing, one-time codes, OAuth, tokens and identity resolution."""
