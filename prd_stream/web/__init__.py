"""Editor HTTP surface for prd-stream."""
