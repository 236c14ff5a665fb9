"""Game analytics services: reconstruction, classification, aggregation and reporting."""
