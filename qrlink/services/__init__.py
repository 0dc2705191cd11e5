"""
Services module for business logic separation.

- qr_code_service / scan_service: persistence for qr_codes and scans
- short_code: collision-checked short code generation
- qr_renderer: PNG rendering of QR images
- redirect_service / background_tasks: redirect lookup and scan tracking
- analytics_service: scan aggregation
- request_metadata: device, browser, location and IP from request headers
"""
