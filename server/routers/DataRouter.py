from fastapi import APIRouter, File, Request, UploadFile

from server.models.requests import CompanyDataRequest, LinksRequest
from server.models.responses import SuccessResponse
from shared.errors import ValidationError
from shared.models.document import FileUpload

router = APIRouter(prefix="/api/data", tags=["data"])


##########################################
################ PROFILE #################
##########################################

def _require_company_data(body: CompanyDataRequest) -> dict:
    if body.company_data is None:
        raise ValidationError("Company data is required", details=["Missing required field: companyData"], fields=["companyData"])
    return body.company_data


@router.post("/upload")
async def upload_company_data(request: Request, body: CompanyDataRequest) -> SuccessResponse:
    """Store and index a new company profile, replacing any previous one.

    Args:
        request (Request): FastAPI request (provides app.state.catalog).
        body (CompanyDataRequest): JSON body of the form {"companyData": {...}}.

    Returns:
        SuccessResponse: The stored profile, its vector count and whether it was indexed.
    """
    result = await request.app.state.catalog.upload_profile(_require_company_data(body))
    return SuccessResponse(
        data=result.to_api(),
        metadata={"timestamp": result.company_data.uploaded_at, "id": result.company_data.id},
    )


@router.get("/company")
async def get_company_data(request: Request) -> SuccessResponse:
    profile = request.app.state.catalog.get_profile()
    return SuccessResponse(data=profile.to_api())


@router.put("/company")
async def update_company_data(request: Request, body: CompanyDataRequest) -> SuccessResponse:
    """Replace the stored profile. Keeps its id and upload time and re-indexes it."""
    result = await request.app.state.catalog.update_profile(_require_company_data(body))
    return SuccessResponse(
        data=result.to_api(),
        metadata={"timestamp": result.company_data.updated_at, "id": result.company_data.id},
    )


@router.delete("/company")
async def delete_company_data(request: Request) -> SuccessResponse:
    profile = await request.app.state.catalog.delete_profile()
    return SuccessResponse(data={"message": "Company data deleted successfully", "deletedData": profile.to_api()})


##########################################
############### DOCUMENTS ################
##########################################

@router.post("/files")
async def upload_files(request: Request, files: list[UploadFile] | None = File(None)) -> SuccessResponse:
    """Ingest a multipart batch of files.

    Bad files are reported per item in data.failed and never fail the request.

    Args:
        request (Request): FastAPI request (provides app.state.catalog).
        files (list[UploadFile] | None): The multipart "files" field.

    Returns:
        SuccessResponse: Per-batch ingestion result with succeeded and failed counts.
    """
    uploads = [FileUpload(file_name=upload.filename or "unnamed", content=await upload.read()) for upload in files or []]
    result = await request.app.state.catalog.ingest_files(uploads)
    return SuccessResponse(data=result.to_api())


@router.post("/links")
async def upload_links(request: Request, body: LinksRequest) -> SuccessResponse:
    result = await request.app.state.catalog.ingest_urls(body.urls)
    return SuccessResponse(data=result.to_api())


@router.get("/documents")
async def list_documents(request: Request) -> SuccessResponse:
    documents = request.app.state.catalog.list_documents()
    return SuccessResponse(data=[document.to_api(exclude={"extracted_text"}) for document in documents])


@router.get("/documents/{id_or_name:path}")
async def get_document(request: Request, id_or_name: str) -> SuccessResponse:
    """Fetch one document, including its extracted text, by id, file name or URL."""
    document = request.app.state.catalog.get_document(id_or_name)
    return SuccessResponse(data=document.to_api())


@router.delete("/documents/{id_or_name:path}")
async def delete_document(request: Request, id_or_name: str) -> SuccessResponse:
    document = await request.app.state.catalog.delete_document(id_or_name)
    return SuccessResponse(data={
        "message": "Document deleted successfully",
        "deletedDocument": document.to_api(exclude={"extracted_text"}),
    })


@router.delete("/documents")
async def reset_documents(request: Request) -> SuccessResponse:
    """Drop the profile and every document and clear the vector collection."""
    result = await request.app.state.catalog.reset()
    return SuccessResponse(data={"message": "All data deleted successfully", **result})


@router.get("/stats")
async def get_data_stats(request: Request) -> SuccessResponse:
    stats = await request.app.state.catalog.stats()
    return SuccessResponse(data=stats.to_api())
