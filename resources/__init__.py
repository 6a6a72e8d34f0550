"""
Resources app for the StudyShare backend.

Users upload study material (notes, assignments, past papers, ...) which
is written to object storage and described by a ``Resource`` row.  The
app covers the whole lifecycle: the upload pipeline with its cleanup on
failure, the shared catalog, download accounting with forced-attachment
URLs, and owner-only deletion.
"""
