import torch
import torch.nn as nn

class Architecture(nn.Module):
    """LSTM over one-hot windows -> Dropout -> Flatten -> Linear over the vocabulary"""
    def __init__(self, vocab_size: int, window_length: int, units: int = 128, dropout: float = 0.2):
        super().__init__()
        self.lstm = nn.LSTM(vocab_size, units, batch_first=True)
        self.drop = nn.Dropout(dropout)
        self.flat = nn.Flatten()
        self.out = nn.Linear(window_length * units, vocab_size)
    def forward(self, x):          # x: [B, W, V]
        h, _ = self.lstm(x)        # [B, W, U]
        h = self.flat(self.drop(h))  # [B, W*U]
        return self.out(h)         # [B, V] logits

    @torch.no_grad()
    def predict(self, x: torch.Tensor) -> torch.Tensor:
        self.eval()
        return torch.softmax(self(x), dim=-1)  # [B, V]
