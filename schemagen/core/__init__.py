"""Core — config, models, pipeline services and use cases."""
