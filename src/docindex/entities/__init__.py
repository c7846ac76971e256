"""Entities - data shapes passed between readers, providers and the index.

- Document: free text plus an identifier and metadata
- ImageNode: an image file to attach to a multimodal message
- TextNode / NodeWithScore: indexed chunks and retrieval results
- ParsedDocument / ParsedPage / PageImage / ExtractedImage: PDF parse output
- Response: a query engine answer with its sources
"""

from docindex.entities.document import Document, DocumentType
from docindex.entities.image import ImageNode
from docindex.entities.node import NodeWithScore, TextNode
from docindex.entities.parsed import ExtractedImage, PageImage, ParsedDocument, ParsedPage
from docindex.entities.response import Response

__all__ = [
    "Document",
    "DocumentType",
    "ExtractedImage",
    "ImageNode",
    "NodeWithScore",
    "PageImage",
    "ParsedDocument",
    "ParsedPage",
    "Response",
    "TextNode",
]
