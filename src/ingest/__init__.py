"""Batch directory ingestion.

This module turns directory trees into repository objects.
It walks batches as event streams and drives the object store.
"""
