"""Request execution against the TextSynth API."""
