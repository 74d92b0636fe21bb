"""
Request-driven filtering, sorting and pagination for listing pages.

Filter combinations submitted through a listing's filter form are stored
once and addressed by a short slug, so filtered listings have short,
bookmarkable URLs. See ``listing_filters.services.filter_state`` for the
request lifecycle.
"""
