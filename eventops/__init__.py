"""
EventOps Framework Core Package

This package contains the core infrastructure for the event request administration
tooling, providing shared configuration, logging, exceptions and collaborator
interfaces for processing modules.
"""

from .interfaces import AuditSink, ActorNameResolver

__version__ = "1.0.0"
__all__ = ['AuditSink', 'ActorNameResolver']
