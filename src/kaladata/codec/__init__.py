"""Container codecs: cursor, checks, per-format decoders and packers."""
