"""
Collector DAO Package

Core imports are lazily loaded so that importing a submodule does not
configure logging or pull in the whole governance stack.
For direct module access, import from submodules:

    from collector_dao.governance import CollectorDAO, ManualClock
    from collector_dao.contracts import CollectibleContract, WorldState
    from collector_dao.config import load_config
"""

__version__ = "0.1.0"


# Lazy imports
def __getattr__(name):
    if name == 'CollectorDAO':
        from .governance.dao import CollectorDAO
        return CollectorDAO
    elif name == 'load_config':
        from .config.loader import load_config
        return load_config
    elif name == 'CollectorDAOException':
        from .exceptions import CollectorDAOException
        return CollectorDAOException
    raise AttributeError(f"module 'collector_dao' has no attribute {name!r}")

__all__ = ['CollectorDAO', 'load_config', 'CollectorDAOException']
