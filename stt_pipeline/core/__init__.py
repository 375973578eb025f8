"""Core timing and reflow modules.

WHY: The core package holds the I/O-free part of the pipeline:
the word and cue dataclasses, the timecode formatter and the reflow engine.
Formatters and the harvester consume these; nothing here touches storage
or the network.

HOW: ir.py defines the data structures, timecode.py renders elapsed time
as HH:MM:SS:FF, reflow.py turns a word stream into timestamped lines and
subtitle cues.

RULES:
- Every function in this package is deterministic and side-effect free
  (apart from the fps-fallback warning log)
- IR dataclasses are the contract between engine adapters and formatters
"""
