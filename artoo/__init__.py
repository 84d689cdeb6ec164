"""Scraping utility event layer.

This package provides the hierarchical event emitter the scraping helpers
use to communicate: per-event and global handlers, one-shot handlers, and
child emitters that receive everything their parent emits.

See artoo.emitter for the Emitter itself.
"""
