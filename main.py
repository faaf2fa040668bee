# main.py
import asyncio
import json
import logging
import math
import os
import threading
import uuid

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from sorter.auto_config import auto_tune_params, max_input_elements
from sorter.check import check_sorted_file
from sorter.create_real_number import generate_test_data
from sorter.errors import InputTooLargeError, InvalidConfigError, InvalidInputFileError
from sorter.external_merge_sort import VISUALIZE_SAMPLE_LIMIT, ExternalMergeSorter, external_merge_sort_visualize
from sorter.loader import ITEM_SIZE, format_file_size, parse_numbers, read_binary, read_binary_file, write_binary_file

logger = logging.getLogger(__name__)

app = FastAPI(title="External Merge Sort Service")

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
INPUT_DIR = os.path.join(BASE_DIR, "storage", "input")
OUTPUT_DIR = os.path.join(BASE_DIR, "storage", "output")

os.makedirs(INPUT_DIR, exist_ok=True)
os.makedirs(OUTPUT_DIR, exist_ok=True)

# jobs up to this size also keep the full step trace
TRACE_LIMIT = VISUALIZE_SAMPLE_LIMIT

# in-memory job tracking
jobs = {}  # job_id -> {"status", "progress", "message", "sorter"}
FINISHED = ("done", "cancelled")


def _job_status(job):
    status = job["status"]
    if status in ("queued", "processing") and job["sorter"].paused:
        return "paused"
    return status


def _get_job(job_id):
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")
    return jobs[job_id]


def _get_running_job(job_id):
    job = _get_job(job_id)
    if job["status"] in FINISHED or job["status"].startswith("error"):
        raise HTTPException(status_code=409, detail=f"Job already {job['status']}")
    return job


async def _save_upload(file, path):
    with open(path, "wb") as buffer:
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            buffer.write(chunk)


def _check_upload_size(path):
    size = os.path.getsize(path)
    if size == 0:
        raise InvalidInputFileError("file is empty")
    if size % ITEM_SIZE != 0:
        raise InvalidInputFileError(f"invalid file: size {size} is not a multiple of {ITEM_SIZE} bytes")
    limit = max_input_elements()
    if size // ITEM_SIZE > limit:
        raise InputTooLargeError(
            f"{format_file_size(size)} does not fit in memory", limit=limit, observed=size // ITEM_SIZE
        )
    return size


# ──────────────────────────────────────────────────────────────
# SORT JOB (background thread, pausable / cancellable)
# ──────────────────────────────────────────────────────────────

def run_sort(job_id: str, input_path: str, output_path: str):
    job = jobs[job_id]
    sorter = job["sorter"]

    def on_progress(percent, message):
        job["progress"] = percent
        job["message"] = message

    try:
        job["status"] = "processing"
        values = read_binary_file(input_path)
        run_size, passes = auto_tune_params(len(values))
        logger.info("job %s: %d values, run_size=%d, ~%d passes", job_id, len(values), run_size, passes)

        result = asyncio.run(sorter.sort(
            values,
            run_size=run_size,
            on_progress=on_progress,
            record_trace=len(values) <= TRACE_LIMIT,
        ))
        write_binary_file(result, output_path)

        meta = {
            "type": "meta",
            "n": len(values),
            "run_size": run_size,
            "runs_count": math.ceil(len(values) / run_size),
            "estimated_passes": passes,
            "cancelled": sorter.cancelled,
            "verified": (not sorter.cancelled) and check_sorted_file(output_path),
        }
        steps = [meta] + [s.to_dict() for s in sorter.get_trace()]
        steps_file = os.path.join(OUTPUT_DIR, f"steps_{job_id}.json")
        with open(steps_file, "w", encoding="utf-8") as f:
            json.dump({"steps": steps}, f)
        # the trace lives in the steps file from here on
        sorter.clear_trace()

        job["status"] = "cancelled" if sorter.cancelled else "done"
    except Exception as e:
        logger.exception("job %s failed", job_id)
        job["status"] = f"error: {str(e)}"
    finally:
        # cleanup input file
        try:
            os.remove(input_path)
        except OSError:
            pass


@app.post("/sort")
async def sort_file(file: UploadFile = File(...)):
    """
    Upload a .bin file of doubles and sort it in the background.
    Returns a job_id to poll status, control the run and download the result.
    """
    job_id = str(uuid.uuid4())
    input_path = os.path.join(INPUT_DIR, f"{job_id}_{os.path.basename(file.filename or 'data.bin')}")
    output_path = os.path.join(OUTPUT_DIR, f"sorted_{job_id}.bin")

    await _save_upload(file, input_path)
    try:
        _check_upload_size(input_path)
    except InvalidInputFileError as e:
        os.remove(input_path)
        raise HTTPException(status_code=400, detail=str(e))
    except InputTooLargeError as e:
        os.remove(input_path)
        raise HTTPException(status_code=413, detail=str(e))

    jobs[job_id] = {"status": "queued", "progress": 0.0, "message": "", "sorter": ExternalMergeSorter()}
    t = threading.Thread(target=run_sort, args=(job_id, input_path, output_path), daemon=True)
    t.start()

    return {
        "job_id": job_id,
        "status_url": f"/status/{job_id}",
        "steps_url": f"/steps/{job_id}",
        "download_url": f"/download/{job_id}"
    }


@app.get("/status/{job_id}")
def check_status(job_id: str):
    job = _get_job(job_id)
    return {
        "job_id": job_id,
        "status": _job_status(job),
        "progress": job["progress"],
        "message": job["message"],
    }


@app.post("/pause/{job_id}")
def pause_job(job_id: str):
    job = _get_running_job(job_id)
    job["sorter"].pause()
    return {"job_id": job_id, "status": _job_status(job)}


@app.post("/resume/{job_id}")
def resume_job(job_id: str):
    job = _get_running_job(job_id)
    job["sorter"].resume()
    return {"job_id": job_id, "status": _job_status(job)}


@app.post("/cancel/{job_id}")
def cancel_job(job_id: str):
    job = _get_running_job(job_id)
    job["sorter"].cancel()
    return {"job_id": job_id, "status": _job_status(job)}


@app.get("/steps/{job_id}")
def get_steps(job_id: str):
    steps_file = os.path.join(OUTPUT_DIR, f"steps_{job_id}.json")
    if os.path.exists(steps_file):
        with open(steps_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        steps = data["steps"]
        meta = steps[0] if steps and isinstance(steps[0], dict) and steps[0].get("type") == "meta" else None
        return JSONResponse(content={"steps": steps, "meta": meta})

    job = _get_job(job_id)
    if job["status"] in ("queued", "processing"):
        raise HTTPException(status_code=202, detail="Still processing")

    raise HTTPException(status_code=404, detail="Steps not ready")


@app.get("/download/{job_id}")
def download_file(job_id: str):
    output_filename = f"sorted_{job_id}.bin"
    file_path = os.path.join(OUTPUT_DIR, output_filename)
    if not os.path.exists(file_path):
        raise HTTPException(status_code=404, detail="File not ready yet")
    return FileResponse(
        path=file_path,
        filename="sorted.bin",
        media_type="application/octet-stream"
    )


# ──────────────────────────────────────────────────────────────
# SORT VISUALIZE — returns the steps right away, no background job
# ──────────────────────────────────────────────────────────────

@app.post("/sort/visualize")
async def sort_visualize(file: UploadFile = File(...), run_size: int | None = None):
    """
    Upload a .bin file; it is sampled down to at most 300 values, sorted,
    and the whole step list is returned at once.

    Response: { steps: [...], meta: {...}, sample_size: N, total_steps: M }
    """
    data = await file.read()
    try:
        values = read_binary(data)
        steps = await external_merge_sort_visualize(values, run_size=run_size)
    except (InvalidInputFileError, InvalidConfigError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    meta = steps[0]
    return JSONResponse(content={
        "steps": steps,
        "meta": meta,
        "sample_size": meta["sample_size"],
        "total_steps": len(steps)
    })


# ──────────────────────────────────────────────────────────────
# INPUT HELPERS — random data and hand-typed numbers
# ──────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    count: int = 20
    min: float = 0.0
    max: float = 100.0
    integer: bool = False
    seed: int | None = None


class ParseRequest(BaseModel):
    text: str


@app.post("/generate")
def generate(req: GenerateRequest):
    try:
        values = generate_test_data(req.count, req.min, req.max, integer=req.integer, seed=req.seed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"values": values}


@app.post("/parse")
def parse(req: ParseRequest):
    try:
        values = parse_numbers(req.text)
    except InvalidInputFileError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"values": values}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="127.0.0.1", port=8000)
