"""Periodic jobs - reminder delivery and streak maintenance, invoked by an external scheduler."""
