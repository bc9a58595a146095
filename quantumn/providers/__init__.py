"""Chat providers and local model discovery."""