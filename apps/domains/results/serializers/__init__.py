from .final_transcript import (
    FinalTranscriptQuerySerializer,
    FinalTranscriptSerializer,
    SignTranscriptSerializer,
    ValidateTranscriptSerializer,
)
from .grading_scale import (
    GradingScaleCreateSerializer,
    GradingScaleSerializer,
    GradingScaleUpdateSerializer,
)
from .result import (
    AuditCorrectionSerializer,
    BatchFilterSerializer,
    BulkCreateSerializer,
    LockSemesterSerializer,
    ResultCreateSerializer,
    ResultDetailSerializer,
    ResultSerializer,
    ResultUpdateSerializer,
    ReturnSerializer,
    UploadSerializer,
)
