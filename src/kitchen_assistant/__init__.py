"""
Kitchen Assistant

Pantry tracking, recipe collection, AI / dataset / vector recommendations and
a weekly meal planner with a shopping list, on top of Supabase and an
OpenAI-compatible chat model.
"""
