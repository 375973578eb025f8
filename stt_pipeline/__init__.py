"""Speech-to-text job pipeline: long-running transcription with subtitle output.

WHY: Audio dropped into an ingest bucket has to become timestamped text and
subtitle files without anyone watching the transcription engine. Jobs run
for minutes to hours, so submission and result collection are decoupled
and tied together only by a durable job record per source file.

HOW: Three stages, each independently testable:
  ingest  (jobs.ingest)  validate, record, start the engine job
  harvest (jobs.harvest) poll pending jobs, reflow words, write artifacts
  format  (formatters)   plain text, SRT, WebVTT, raw JSON
The HTTP API (server.app) and the CLI (cli) are thin shells over these.

RULES:
- The job record is the only state shared between ingest and harvest
- All formatters consume the same Transcript IR
- Engine specifics stay behind engine.TranscriptionEngine
"""

__version__ = "0.1.0"
