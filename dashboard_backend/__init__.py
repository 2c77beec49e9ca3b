"""Dashboard export backend: renders dashboard layouts to images, PDF, PPTX and HTML."""
