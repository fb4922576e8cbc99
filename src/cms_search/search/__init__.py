"""
In-memory search package.

- tokenizer: text normalization into index tokens
- index: inverted and forward index structures
- indexer: document derivation, boosts and index mutation
- scoring: TF-IDF style relevance scoring
- fuzzy: edit-distance term expansion
- highlight: matched-term snippets
- query_engine: retrieval, filtering, sorting and pagination
- suggestions: autocomplete ranking
- analytics: search usage statistics
"""
