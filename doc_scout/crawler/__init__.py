"""doc_scout.crawler: URL canonicalization, admission policy and the async crawl loop."""
