"""Sessions, trace types, backend runners and rate-distortion computation."""