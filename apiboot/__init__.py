"""HTTP service bootstrap: CORS, validation and error translation under `/api/v1`."""

__version__ = "1.0.0"
