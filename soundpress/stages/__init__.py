"""
SoundPress v1 Pipeline Stages

Fixed order — DO NOT reorder:
    0. configure  — Validate run configuration
    A. detect     — Format detection
    B. decode     — Decode adapter → SampleBuffer
    C. analyze    — YIN pitch analysis (optional)
    D. reduce     — Mean downmix to mono (optional)
    E. resample   — Sample-rate conversion (optional)
    F. encode     — Encode adapter → Ogg Vorbis bytes
    G. optimize   — Optimize adapter (optional)

Each stage module exposes:
    CONTRACT               StageContract
    should_run(config)     bool
    run(ctx)               RunContext
"""
