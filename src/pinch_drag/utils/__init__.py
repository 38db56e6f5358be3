"""Configuration, logging, performance and visualization helpers."""
