"""Output: Markdown files on disk and Rich terminal reports."""
