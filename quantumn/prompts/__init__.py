"""System prompts for the assistant's operating modes."""