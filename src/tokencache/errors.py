# src/tokencache/errors.py


class TokenizerError(Exception):
    """Raised when a tokenizer cannot be resolved, fetched, loaded or used.

    The message always carries the failing step and the path or URL involved.
    """
