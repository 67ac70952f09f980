"""Deploy applications to Kubernetes Engine from an Estafette pipeline."""

__version__ = "0.1.0"
