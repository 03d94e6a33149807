from app.schemas.programmes import ProgramOut, PhaseOut, ProgramStatusRequest
from app.schemas.candidatures import CandidatureOut, AdvanceRequest, AdvanceOut, WinnerOut
from app.schemas.evaluation import CritereOut, ReponseOut, CritereReponseOut, FinalScoreOut
