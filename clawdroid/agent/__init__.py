"""Decision layer: conversation shaping, providers and reply parsing."""
