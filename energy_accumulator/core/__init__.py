"""Configuration for the storage and energy layers."""
