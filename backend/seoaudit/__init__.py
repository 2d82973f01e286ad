"""
SEO audit pipeline: crawl, analyze, score and report on a batch of URLs.
"""
