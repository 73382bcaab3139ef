"""EventOps Processing Modules

This package contains the processing modules built on the EventOps framework.
Each module consumes the shared configuration, logging and collaborator
interfaces from ``eventops`` and provides the business logic for one aspect of
event request administration.
"""
