from skulabels.api.app import app

__all__ = ["app"]
