"""Pipeline services — scan, extract, resolve, emit, validate, watch."""
