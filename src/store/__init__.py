"""Repository object store layer.

This module talks to the DOMS Fedora repository or a local stand-in.
It covers object creation, datastreams, relations and cleanup.
"""
