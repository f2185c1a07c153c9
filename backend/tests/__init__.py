# Force SQLModel table registration at test discovery time
import clubcomp.models  # noqa: F401
