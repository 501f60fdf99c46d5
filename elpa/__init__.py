# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
elpa: package metadata extraction for an Emacs Lisp package archive.

Layers:
  sexp:       byte-level tokenizer for package definition files
  pkgdef:     define-package parser/validator
  headers:    single-file header comment extractor
  archive:    tar archive extractor
  codec:      details payload encoding
  index:      archive-contents rendering
  repository: local directory archive (upload + storage)
"""

__all__ = ["archive", "codec", "errors", "headers", "index", "model", "pkgdef", "repository", "sexp", "span"]
