"""DocChat: chat with your own PDF documents using retrieval-augmented generation."""

__version__ = "0.1.0"
