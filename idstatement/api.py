"""
FastAPI backend service for statement parsing.
"""
from fastapi import FastAPI, File, Form, UploadFile, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from typing import Optional

from .core.detectors import TemplateDetector
from .core.errors import PasswordError, StatementError, UnknownFormatError
from .core.loader import PDFLoader
from .core.runner import parse_statement
from .formatting import tag_description

app = FastAPI(title="Bank Statement Parser", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],  # Vite and other dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def _read_pdf(file: UploadFile) -> bytes:
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="File must be a PDF")
    return await file.read()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Bank Statement Parser API", "status": "healthy"}


@app.post("/parse")
async def parse_pdf(
    file: UploadFile = File(...),
    template: str = Form("bca_statement"),
    password: Optional[str] = Form(None),
):
    """
    Parse a PDF file and return its transactions.

    Args:
        file: Uploaded PDF file
        template: Template ID to use, or "auto" to detect it
        password: Password for encrypted PDFs

    Returns:
        Parsed transactions as JSON
    """
    content = await _read_pdf(file)
    logger.info(f"Processing PDF: {file.filename}")

    try:
        if template == "auto":
            with PDFLoader(content, password=password) as loader:
                detected = TemplateDetector().detect_template(loader.load())
            if not detected:
                raise HTTPException(status_code=400, detail="Could not detect template for this PDF")
            template = detected
            logger.info(f"Detected template: {template}")

        result = parse_statement(content, template, password=password)

    except PasswordError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except UnknownFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StatementError as e:
        logger.error(f"Error parsing PDF: {e}")
        raise HTTPException(status_code=500, detail=f"Error parsing PDF: {str(e)}")

    data = result.model_dump(mode="json")
    for transaction, record in zip(data['transactions'], result.transactions):
        transaction['display_description'] = tag_description(record.description)
        transaction['date_text'] = record.date_text

    logger.info(f"Successfully parsed PDF: {len(result.transactions)} transactions found")

    return JSONResponse(content={
        "success": True,
        "data": data,
        "template_used": template,
        "summary": {
            "transactions_count": len(result.transactions),
            "year": result.year,
            "empty_pages": result.empty_pages,
        }
    })


@app.post("/detect-format")
async def detect_pdf_format(
    file: UploadFile = File(...),
    password: Optional[str] = Form(None),
):
    """
    Detect which template matches a PDF file.

    Args:
        file: Uploaded PDF file
        password: Password for encrypted PDFs

    Returns:
        Detected template ID
    """
    content = await _read_pdf(file)

    try:
        with PDFLoader(content, password=password) as loader:
            template = TemplateDetector().detect_template(loader.load())
    except PasswordError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except StatementError as e:
        logger.error(f"Error detecting template: {e}")
        raise HTTPException(status_code=500, detail=f"Error detecting template: {str(e)}")

    if not template:
        raise HTTPException(status_code=400, detail="No matching template found")

    return JSONResponse(content={
        "success": True,
        "template": template
    })


@app.get("/formats")
async def list_formats():
    """List all available templates."""
    detector = TemplateDetector()
    return JSONResponse(content={
        "success": True,
        "templates": [
            {
                "id": template_id,
                "name": detector.get_template(template_id).get('label', template_id),
                "bank": detector.get_template(template_id).get('bank', ''),
            }
            for template_id in detector.list_templates()
        ]
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
