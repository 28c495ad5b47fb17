"""Backlink suggestion pipeline.

The modules in this package are deliberately small: ``urlnorm`` handles
URL equality, ``sentences`` owns the fragment index, ``retrieval`` finds
candidate fragments, ``confirm`` and ``keywords`` talk to the language
model, ``linkcheck`` removes already-linked suggestions and ``persist``
stores the survivors. ``pipeline`` wires them together.
"""
