"""scriptsign - sign and verify scripts through a local code-signing service.

Also ships a small utility for finding a free TCP port for that service.
"""

__version__ = "0.1.0"
__author__ = "scriptsign Contributors"

from scriptsign.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
