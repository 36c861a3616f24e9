"""
Client configuration: an explicit set of named options with defaults, validated eagerly, that can also be
read from a ConfigObj file checked against a schema.
"""
