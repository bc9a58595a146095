"""Terminal theme configuration."""