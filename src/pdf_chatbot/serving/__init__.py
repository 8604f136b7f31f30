"""
Serving — FastAPI application for PDF upload and streamed answers.

``POST /upload`` ingests a PDF; ``GET /chat?question=…`` streams the
answer as Server-Sent Events terminated by ``data: [DONE]``.
"""
