"""
Recommendation layer (Kitchen Assistant)

Three independent adapters that all return RecipeRecommendation lists:
  - dataset      : community dataset rows scored by ingredient overlap
  - suggestions  : new recipes written by the chat model from the pantry
  - rag          : vector search over dataset embeddings, optionally
                   tidied by the chat model, with a text-search fallback

None of them persist anything; saving a recommendation goes through
RecipeStore.save_external().
"""
