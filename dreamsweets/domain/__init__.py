"""Describes the DreamSweets domain. Centres around the `GenerationOrchestrator`.

Why is this hard?

- Both the concept and the picture come from models served behind apis.
  They are slow and they fail, each in their own way.
- The text and the image fail independently. A missing picture should never
  cost the user their recipe.
- A refinement that goes wrong should leave the last good result exactly
  where it was.

The providers are behind two small protocols so they can be faked.
"""
