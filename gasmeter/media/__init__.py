"""
Media package for the gas-meter reader.

- models: ReadingResult, ReadingSession, MediaReference
- storage: staging image bytes where the inference gateway can reach them
- validator: schema check of the structured extraction payload
- disambiguator: resolving '?' digits with a text-only inference pass
- pipeline: image bytes → final reading
"""
