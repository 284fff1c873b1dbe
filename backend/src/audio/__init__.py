"""PCM decoding, peak downsampling and record encoding."""
