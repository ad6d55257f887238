"""Scraping of Beat stats and OTel Prometheus metrics endpoints."""