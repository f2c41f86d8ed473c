"""staticdeploy - provision and validate a static web container behind Traefik"""

__version__ = "1.0.0"
