# Services package.
#
# entity_service is the shared lifecycle engine (create, update, delete,
# status changes and blob sequencing).  Each entity module supplies an
# EntityDefinition and the hooks that differ for its type:
#
#   article_service       blogs: read time, author defaults, tag stats
#   service_page_service  service sections and pages, embedded FAQs
#   sample_service        writing samples, per-subject counts
#   testimonial_service   testimonials, homepage flag
#   image_asset_service   admin image library
#   order_service         order intake (not persisted)
#
# Services receive a SqlRepository bound to the request session, so the
# router layer still owns the transaction through ``get_db``.
